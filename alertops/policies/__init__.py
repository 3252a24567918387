# Policies Package
"""
Policy loading and caching.

The policy file is the only place alert types are defined; adding a new
alert type is a configuration change, not a code change.
"""

from alertops.policies.store import (
    PolicyStore,
    get_policy_store,
    set_policy_store,
    load_policies,
    reload_policies,
    resolve_policies_path,
    parse_policies_file,
    DEFAULT_POLICIES_PATH,
    LEGACY_POLICIES_PATH,
)

__all__ = [
    "PolicyStore",
    "get_policy_store",
    "set_policy_store",
    "load_policies",
    "reload_policies",
    "resolve_policies_path",
    "parse_policies_file",
    "DEFAULT_POLICIES_PATH",
    "LEGACY_POLICIES_PATH",
]

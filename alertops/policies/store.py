"""
Policy Store - Lazy, Atomically Reloadable Policy Cache

Resolves the policy file, validates every policy and keeps the resulting
list in a single slot. Readers take a reference to the current tuple and
never see a partially updated set; reload builds the new tuple completely
before swapping it in.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from alertops.config import get_config
from alertops.models.policy import Policy
from alertops.utils.error_handling import PolicyConfigError

logger = logging.getLogger(__name__)


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_POLICIES_PATH = PROJECT_ROOT / "config" / "policies.json"
LEGACY_POLICIES_PATH = Path(__file__).resolve().parent / "policies.json"


def resolve_policies_path(override: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve the policy source location.

    Order: explicit override (argument or POLICIES_PATH) > config/policies.json
    > legacy alertops/policies/policies.json.

    Raises:
        PolicyConfigError: If no candidate exists.
    """
    override = override or get_config().policies_path
    if override:
        return Path(override).expanduser().resolve()

    if DEFAULT_POLICIES_PATH.exists():
        return DEFAULT_POLICIES_PATH

    if LEGACY_POLICIES_PATH.exists():
        logger.warning(
            f"[PolicyStore] Using legacy policies.json location at {LEGACY_POLICIES_PATH}. "
            f"Please move it to {DEFAULT_POLICIES_PATH}"
        )
        return LEGACY_POLICIES_PATH

    raise PolicyConfigError(
        f"Policies file not found. Create {DEFAULT_POLICIES_PATH} "
        f"or set the POLICIES_PATH environment variable."
    )


def parse_policies_file(path: Path) -> tuple[Policy, ...]:
    """
    Read and validate a policy file.

    Raises:
        PolicyConfigError: Missing file, invalid JSON, missing 'policies'
            array, invalid policy or duplicate alert_type.
    """
    if not path.exists():
        raise PolicyConfigError(
            f"Policies file not found at {path}. "
            f"Create it or point POLICIES_PATH at your policies file."
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PolicyConfigError(f"Invalid JSON in policies file at {path}: {e}") from e
    except OSError as e:
        raise PolicyConfigError(f"Cannot read policies file at {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("policies"), list):
        raise PolicyConfigError(f"Policies file at {path} must contain a 'policies' array")

    policies = []
    seen: set[str] = set()
    for index, raw in enumerate(data["policies"]):
        try:
            policy = Policy.model_validate(raw)
        except ValidationError as e:
            label = raw.get("alert_type", f"#{index}") if isinstance(raw, dict) else f"#{index}"
            raise PolicyConfigError(f"Invalid policy {label} in {path}: {e}") from e

        if policy.alert_type in seen:
            raise PolicyConfigError(
                f"Duplicate alert_type '{policy.alert_type}' in {path}; alert types must be unique"
            )
        seen.add(policy.alert_type)
        policies.append(policy)

    return tuple(policies)


class PolicyStore:
    """
    Process-wide policy cache.

    The cached tuple is replaced wholesale; it is never mutated in place,
    so concurrent readers need no locking.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize store.

        Args:
            path: Explicit policy file location (overrides POLICIES_PATH).
        """
        self._path_override = path
        self._policies: Optional[tuple[Policy, ...]] = None
        self._source: Optional[Path] = None

    @property
    def source(self) -> Optional[Path]:
        """Path the current policy set was loaded from."""
        return self._source

    def load(self) -> list[Policy]:
        """Return the cached policy set, loading it on first use."""
        policies = self._policies
        if policies is None:
            policies = self._build()
        return list(policies)

    def reload(self) -> list[Policy]:
        """Rebuild the policy set from the source and swap it in.

        A failing reload raises and leaves the previous set active.
        """
        return list(self._build())

    def get_policy(self, alert_type: Optional[str]) -> Optional[Policy]:
        if not alert_type:
            return None
        for policy in self.load():
            if policy.alert_type == alert_type:
                return policy
        return None

    def _build(self) -> tuple[Policy, ...]:
        path = resolve_policies_path(self._path_override)
        policies = parse_policies_file(path)
        # Single reference assignment: the swap is atomic for readers
        self._policies = policies
        self._source = path
        logger.info(f"[PolicyStore] Loaded {len(policies)} policies from {path}")
        return policies


# Global store instance
_store: Optional[PolicyStore] = None


def get_policy_store() -> PolicyStore:
    """Get or create the process-wide policy store."""
    global _store
    if _store is None:
        _store = PolicyStore()
    return _store


def set_policy_store(store: Optional[PolicyStore]) -> None:
    """Replace the process-wide store (None resets to lazy default)."""
    global _store
    _store = store


def load_policies() -> list[Policy]:
    return get_policy_store().load()


def reload_policies() -> list[Policy]:
    return get_policy_store().reload()

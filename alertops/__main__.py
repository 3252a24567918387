from alertops.cli import main

raise SystemExit(main())

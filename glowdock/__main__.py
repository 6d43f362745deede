from glowdock.cli import main

raise SystemExit(main())

from hoststat.app import main

raise SystemExit(main())

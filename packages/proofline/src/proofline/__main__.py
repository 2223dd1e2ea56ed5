from .claims_tools import main

raise SystemExit(main())

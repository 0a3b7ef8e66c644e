from bundle_runtime.main import main

raise SystemExit(main())

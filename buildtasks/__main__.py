from buildtasks.cli import main

raise SystemExit(main())

from gltflink.cli.main import main

raise SystemExit(main())

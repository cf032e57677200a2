from mlc.cli import main


raise SystemExit(main())

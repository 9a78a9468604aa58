from byteseek.cli import main

raise SystemExit(main())

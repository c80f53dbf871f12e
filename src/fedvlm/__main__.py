from __future__ import annotations

from fedvlm.cli import main

raise SystemExit(main())

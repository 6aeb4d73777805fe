"""Allow ``python -m listcore.cli``."""

from .main import main

raise SystemExit(main())

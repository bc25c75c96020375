import sys

from kmsjwk.cli import main

sys.exit(main())

import sys

from bkt.cli import main

sys.exit(main())

import sys

from osdtimestamp.cli import main

sys.exit(main())

import sys

from muxfmt.cli import main

sys.exit(main())

import sys

from rz.cli import main

sys.exit(main())

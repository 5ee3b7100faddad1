import sys

from mototrack.cli import main

sys.exit(main())

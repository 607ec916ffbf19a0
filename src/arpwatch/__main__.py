import sys

from arpwatch.cli import main

sys.exit(main())

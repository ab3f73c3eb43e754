import sys

from python_booter.cli import main

sys.exit(main())

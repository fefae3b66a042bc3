import sys

from pyswitcher.cli import main

sys.exit(main())

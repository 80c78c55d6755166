import sys

from titleseed.cli import main

sys.exit(main())

import sys

from subrecon.cli import main

sys.exit(main())

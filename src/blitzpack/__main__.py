import sys

from blitzpack.main import main

sys.exit(main())

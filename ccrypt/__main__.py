import sys

from ccrypt.cli import main

sys.exit(main())

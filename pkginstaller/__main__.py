import sys

from pkginstaller.cli import main

sys.exit(main())

import sys

from module_upgrade.cli import main

sys.exit(main())

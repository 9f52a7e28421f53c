import sys

from zapbroker.main import main

sys.exit(main())

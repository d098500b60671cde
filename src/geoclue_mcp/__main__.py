"""python -m geoclue_mcp"""

import sys

from .main import main

sys.exit(main())

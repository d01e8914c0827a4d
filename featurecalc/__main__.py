"""Allow running as: python -m featurecalc"""

import sys

from featurecalc.run import main

sys.exit(main())

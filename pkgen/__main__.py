import sys

from pkgen.app import main


sys.exit(main())

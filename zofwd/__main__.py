import sys

from zofwd.demo.linear import main

sys.exit(main())

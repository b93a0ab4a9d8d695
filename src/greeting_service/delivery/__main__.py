import sys

from greeting_service.delivery.cli import main

sys.exit(main())

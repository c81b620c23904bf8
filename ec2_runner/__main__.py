import sys

from ec2_runner.action import main

sys.exit(main())

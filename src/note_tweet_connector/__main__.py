"""Permite `python -m note_tweet_connector`."""

import sys

from note_tweet_connector.cli import main

sys.exit(main())

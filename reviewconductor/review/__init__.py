"""Pull request review comments: models, quoting, client, and browser wiring."""

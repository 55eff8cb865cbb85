"""Pull-request workflow automation with safe commit-history rewriting."""

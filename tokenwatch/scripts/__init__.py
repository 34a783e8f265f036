"""Administrative one-off scripts."""

"""Campus Lost & Found backend: item reporting, maintainer assignment and claim review."""

"""Testing helpers – in-memory doubles for flagcore ports."""

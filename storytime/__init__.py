"""StoryTime API: bedtime stories generated for child profiles."""

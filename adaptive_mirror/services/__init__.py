"""Session services: input capture, idle tracking, lifecycle and export."""

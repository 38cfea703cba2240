"""Domain services: matching, notifications, suggestions, geo and interest filtering."""

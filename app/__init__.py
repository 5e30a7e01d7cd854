"""Task tracker service package."""

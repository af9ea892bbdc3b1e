"""Terminal rendering for gb-tool."""

"""TASVideos site components."""

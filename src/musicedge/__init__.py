"""musicedge - stateless edge proxy for music metadata and audio."""

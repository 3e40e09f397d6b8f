"""Input document decoders (GeoJSON feature collections and TopoJSON)."""

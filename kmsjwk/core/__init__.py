"""Key conversion core: registry, codec, native keys and JWKs."""

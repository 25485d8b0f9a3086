"""Servicios del Core: políticas, registro de caché y recursos."""

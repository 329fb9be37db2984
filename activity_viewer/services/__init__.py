"""View-level derivations built on the core log structures."""

"""Core building blocks of pgstack.

- extensions: declarative catalog of the bundled extensions
- image: Dockerfile / init script rendering and the image build
- storage: PostgreSQL access to the extension catalog
- health: health checks for database, extensions and preload libraries
- smoke: SQL smoke checks exercising each extension
"""

"""
Version sources for tracked tools.

Each source type has a SourceAdapter that turns a locator into a
VersionInfo. The registry maps tool ids to their source descriptors.
"""

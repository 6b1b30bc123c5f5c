"""Domain layer — pure lifecycle building blocks.

Nothing here touches a database, the filesystem, or plugin machinery.
"""

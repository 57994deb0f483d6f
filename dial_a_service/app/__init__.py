"""
Application package initializer.

The service is split by concern: ``core`` holds the platform pieces
(configuration, database, auth, file storage, realtime events),
``schemas`` the request and response models, ``services`` the business
logic and ``api`` the versioned HTTP routes.
"""

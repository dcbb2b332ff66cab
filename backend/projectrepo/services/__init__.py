# Services package init
"""
ProjectRepo Backend - Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the database.
How:   Services receive the database session and the caller's
       RequestContext explicitly on every call; collaborators (mailer,
       file storage) are injected at construction.

Service Inventory:
    - lifecycle:             the project status transition table
    - ProjectService:        submit/review/publish actions, reads, search
    - RegistrationService:   classlist-gated sign-up with one-time codes
    - AuthService:           credential check and token issuance
    - AdminService:          users and classlist administration
    - NotificationService:   in-app notices
    - FileService:           PDF validation and storage
    - Mailer:                outbound email (SMTP or disabled)
    - navigation:            role to navigation links
"""

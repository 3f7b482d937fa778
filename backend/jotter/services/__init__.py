# Services package init
"""
Jotter Backend — Services Layer

Service Inventory:
    - IdentityVerifier: ID token → account id via the identity provider
    - SessionCodec / SessionGuard: session cookie encoding and validation
    - NoteService: per-user notes store adapter
"""

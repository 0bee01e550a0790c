"""
rolegate.profiles

Application profile documents (Firestore).

Responsibilities:
- Define the role enum and the profile document model.
- Provide repositories for profile documents and the admin audit trail.
"""

# Package marker; import from submodules.

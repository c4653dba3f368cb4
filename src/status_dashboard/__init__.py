"""Status dashboard for DRN and UCM document-review tracking."""

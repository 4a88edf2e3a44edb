"""External collaborators: mailbox, delivery, analysis, charts, parsing."""

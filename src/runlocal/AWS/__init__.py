"""AWS-backed collaborators: sessions, task definitions and secret stores."""

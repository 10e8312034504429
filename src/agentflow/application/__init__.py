"""Application services: tracking, handoffs, conversations, sessions."""

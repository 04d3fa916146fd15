"""Business services: storage, AI gateway, resume workflow and matching."""

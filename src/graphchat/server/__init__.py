"""HTTP request handler for the chat front end."""

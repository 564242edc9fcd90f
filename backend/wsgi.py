from agentdesk import create_app

app = create_app()

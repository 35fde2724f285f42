"""
WSGI entry point for BluffQuiz application.
Used for production deployment with Gunicorn.
"""

from app import create_app_or_exit

app, socketio, container = create_app_or_exit()

if __name__ == "__main__":
    # For development with Gunicorn
    socketio.run(app, host='0.0.0.0', port=8000, debug=True)
else:
    # For production WSGI servers
    application = app

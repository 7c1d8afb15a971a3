from .index import index_bp
from .auth import auth_bp
from .events import events_bp
from .teams import teams_bp
from .judges import judges_bp
from .scores import scores_bp
from .sponsors import sponsors_bp
from .users import users_bp
from .activity import activity_bp
from .admin import admin_bp

def register_blueprints(app):
    app.register_blueprint(index_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(teams_bp)
    app.register_blueprint(judges_bp)
    app.register_blueprint(scores_bp)
    app.register_blueprint(sponsors_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(admin_bp)

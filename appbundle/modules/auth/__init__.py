from appbundle.bootstrap.resolver import RouteModule
from appbundle.modules.auth.interceptors import forgot_password_interceptor
from appbundle.modules.auth.routes import router

auth_module = RouteModule(name="auth", router=router)

__all__ = ["auth_module", "forgot_password_interceptor", "router"]

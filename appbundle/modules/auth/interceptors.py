from appbundle.interceptors import DefaultValidatorInterceptor
from appbundle.schemas import ForgotPasswordPayload

forgot_password_interceptor = DefaultValidatorInterceptor(ForgotPasswordPayload)

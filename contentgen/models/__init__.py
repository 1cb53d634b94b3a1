from contentgen.models.user import User
from contentgen.models.content import Content
from contentgen.models.subscription import Subscription
from contentgen.models.payment import Payment
from contentgen.models.feedback import Feedback

__all__ = ["User", "Content", "Subscription", "Payment", "Feedback"]

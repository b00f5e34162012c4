from salessync.models.company import Company
from salessync.models.user import User
from salessync.models.brand import Brand
from salessync.models.product import Product
from salessync.models.warehouse import Warehouse
from salessync.models.customer import Customer
from salessync.models.visit import Visit
from salessync.models.sale import Sale, SaleItem
from salessync.models.campaign import Campaign
from salessync.models.activation import Activation
from salessync.models.survey import Survey, SurveyResponse
from salessync.models.login_attempt import LoginAttempt
from salessync.models.street_interaction import StreetInteraction

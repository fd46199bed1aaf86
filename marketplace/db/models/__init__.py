# marketplace/db/models/__init__.py
from marketplace.db.models.user import Business, User
from marketplace.db.models.product import Product, ProductParameter
from marketplace.db.models.warehouse import Warehouse
from marketplace.db.models.offer import Offer, OfferPrice
from marketplace.db.models.incoterm import Incoterm
from marketplace.db.models.country import CountryExclusion
from marketplace.db.models.offer_view import OfferView, OfferFavorite

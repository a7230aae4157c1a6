from trucksales.models.product import Product
from trucksales.models.client import Client
from trucksales.models.sales import Sale, SaleItem
from trucksales.models.expense import Expense

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'fuel'

router = DefaultRouter()
router.register(r'categories', views.FuelCategoryViewSet, basename='category')
router.register(r'subtypes', views.FuelSubTypeViewSet, basename='subtype')
router.register(r'products', views.FuelProductViewSet, basename='product')

urlpatterns = [
    path('hierarchy/', views.fuel_hierarchy, name='hierarchy'),
    path('hierarchy/sequential/', views.create_fuel_hierarchy, name='hierarchy-sequential'),
    path('category-defaults/', views.category_defaults, name='category-defaults'),
    path('products/batch/', views.batch_create_products, name='product-batch'),
    path('search/', views.search_fuel_entities, name='search'),
    path('', include(router.urls)),
]

from .address import AddressInput, AddressSchema
from .customer import CustomerInput, CustomerSchema, CustomerListItem, CustomerSummary, CustomerRef
from .role import RoleRef
from .user import UserInput, UserUpdate, UserDetails, UserListItem, UserCustomer, ConsignedRef, AccessToken
from .wine import WineInput, WineSchema, WineDetails, WineOnConsignedDetail, WineConsignedRef, WineMetric
from .consigned import ConsignedItemInput, ConsignedSchema, WineOnConsignedSchema

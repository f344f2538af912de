"""User-facing messages. The storefront shows these verbatim in its toasts."""

# auth / session
UNAUTHORIZED = "Vui lòng đăng nhập để tiếp tục"
SESSION_EXPIRED = "Phiên đăng nhập đã hết hạn, vui lòng đăng nhập lại"
INVALID_TOKEN = "Token không hợp lệ"
FORBIDDEN = "Bạn không có quyền truy cập tính năng này"
ACCOUNT_BLOCKED = "Tài khoản đã bị khóa"
INVALID_CREDENTIALS = "Email hoặc mật khẩu không đúng"
EMAIL_EXISTS = "Email đã được đăng ký"
INVALID_REFRESH_TOKEN = "Refresh token không hợp lệ hoặc đã hết hạn"
WRONG_CURRENT_PASSWORD = "Mật khẩu hiện tại không đúng"
LOGIN_SUCCESS = "Đăng nhập thành công"
LOGOUT_SUCCESS = "Đăng xuất thành công"
REGISTER_SUCCESS = "Đăng ký tài khoản thành công"

# validation
INVALID_DATA = "Dữ liệu không hợp lệ"
EMAIL_INVALID = "Email không hợp lệ"
EMAIL_REQUIRED = "Email là bắt buộc"
PASSWORD_REQUIRED = "Mật khẩu là bắt buộc"
PASSWORD_WEAK = "Mật khẩu phải chứa ít nhất 1 chữ hoa, 1 chữ thường, 1 số và 1 ký tự đặc biệt"
PASSWORD_TOO_SHORT = "Mật khẩu phải có ít nhất 8 ký tự"
PASSWORD_MISMATCH = "Mật khẩu xác nhận không khớp"
PHONE_INVALID = "Số điện thoại không hợp lệ"

# generic
NOT_FOUND = "Không tìm thấy tài nguyên"
METHOD_NOT_ALLOWED = "Phương thức không được hỗ trợ"
SERVER_ERROR = "Lỗi máy chủ, vui lòng thử lại sau"

# products / categories
PRODUCT_NOT_FOUND = "Không tìm thấy sản phẩm"
PRODUCT_UNAVAILABLE = "Sản phẩm không còn kinh doanh"
OUT_OF_STOCK = "Sản phẩm đã hết hàng"
SKU_EXISTS = "Mã SKU đã tồn tại"
CATEGORY_NOT_FOUND = "Không tìm thấy danh mục"
CATEGORY_EXISTS = "Tên danh mục hoặc slug đã tồn tại"
CATEGORY_IN_USE = "Không thể xóa danh mục đang có sản phẩm"
BRAND_NOT_FOUND = "Không tìm thấy thương hiệu"
BRAND_EXISTS = "Tên thương hiệu đã tồn tại"
BRAND_IN_USE = "Không thể xóa thương hiệu đang có sản phẩm"
BRAND_TOO_MANY_FLAGS = "Chỉ được chọn tối đa 2 cờ hiệu"

# cart
CART_ITEM_NOT_FOUND = "Sản phẩm không có trong giỏ hàng"
CART_EMPTY = "Giỏ hàng trống"

# coupons
COUPON_NOT_FOUND = "Không tìm thấy mã giảm giá"
COUPON_EXISTS = "Mã giảm giá đã tồn tại"
COUPON_PAUSED = "Mã giảm giá đang tạm dừng"
COUPON_UPCOMING = "Mã giảm giá chưa đến thời gian sử dụng"
COUPON_EXPIRED = "Mã giảm giá đã hết hạn"
COUPON_EXHAUSTED = "Mã giảm giá đã hết lượt sử dụng"
COUPON_USER_LIMIT = "Bạn đã sử dụng hết số lần cho phép của mã giảm giá này"
COUPON_MIN_PURCHASE = "Đơn hàng chưa đạt giá trị tối thiểu {amount} để áp dụng mã giảm giá"
COUPON_PERCENT_RANGE = "Phần trăm giảm giá không thể vượt quá 100%"
COUPON_DATE_ORDER = "Ngày kết thúc phải lớn hơn ngày bắt đầu"
COUPON_CODE_FORMAT = "Mã giảm giá chỉ được chứa chữ hoa, số, dấu gạch ngang và dấu gạch dưới (3-20 ký tự)"

# orders
ORDER_NOT_FOUND = "Không tìm thấy đơn hàng"
ORDER_CREATED = "Đặt hàng thành công"
ORDER_CANCELLED = "Hủy đơn hàng thành công"
ORDER_CANNOT_CANCEL = "Chỉ có thể hủy đơn hàng đang chờ xác nhận"
ORDER_INVALID_TRANSITION = "Không thể chuyển trạng thái đơn hàng từ '{current}' sang '{target}'"
ORDER_STATUS_UPDATED = "Cập nhật trạng thái đơn hàng thành công"
INSUFFICIENT_STOCK = "Sản phẩm {name} không đủ số lượng trong kho"

# reviews / questions
REVIEW_NOT_FOUND = "Không tìm thấy đánh giá"
REVIEW_EXISTS = "Bạn đã đánh giá sản phẩm này"
QUESTION_NOT_FOUND = "Không tìm thấy câu hỏi"

# customers
USER_NOT_FOUND = "Không tìm thấy người dùng"
CANNOT_DELETE_SELF = "Không thể xóa tài khoản của chính mình"
CANNOT_DELETE_LAST_ADMIN = "Không thể xóa quản trị viên cuối cùng"
USER_HAS_ORDERS = "Không thể xóa người dùng đã có đơn hàng, hãy khóa tài khoản thay thế"

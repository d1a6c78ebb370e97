"""
utils/constants.py

Purpose: Centralized static content

- All user-facing messages
- Command keywords and limits
- Reseller protocol constants

(Prevents hardcoding across the codebase)
"""

# ============================================================
# LIMITS & PROTOCOL
# ============================================================

# Safety ceiling per airtime transaction, independent of configuration
MAX_AIRTIME_AMOUNT = 100_000

SAVED_NUMBERS_LIMIT = 5
HISTORY_LIMIT = 10

RESELLER_SUCCESS_STATUS = "SUCCESS"
TECHNICAL_ERROR_CODE = "-10017"
HOURLY_LIMIT_ERROR_CODE = "-10010"

TRANSACTION_ID_PREFIX = "LYCA"

# ============================================================
# COMMAND KEYWORDS
# ============================================================

GREETING_COMMANDS = ("start", "hello", "hi")
MENU_COMMANDS = ("menu", "help")
CANCEL_COMMANDS = ("cancel", "stop")
BALANCE_COMMANDS = ("balance",)
BUNDLE_COMMANDS = ("bundles", "1")
AIRTIME_COMMANDS = ("airtime", "2")
HISTORY_COMMANDS = ("history", "3")
SUPPORT_COMMANDS = ("support", "4")
PROFILE_COMMANDS = ("profile", "5")
STATUS_COMMAND = "status"

CONFIRM_YES = ("1", "yes")
CONFIRM_NO = ("2", "no", "cancel")
NEW_NUMBER_COMMAND = "new"

# ============================================================
# WELCOME & MENU
# ============================================================

WELCOME_MESSAGE = """🎉 *Welcome to {bot_name}{name_suffix}!*

Your one-stop solution for:
📱 Data Bundle Purchases
💰 Airtime Top-ups
📊 Balance & History Checking

💡 *Quick Start:*
• Send 'menu' to see all options
• Send any Uganda number to check info
• Send 'balance' to check your wallet

Ready to get started? Send *menu* 🚀"""

MAIN_MENU_MESSAGE = """🏠 *{bot_name} Main Menu*

1️⃣ Buy Data Bundles
2️⃣ Buy Airtime
3️⃣ Transaction History
4️⃣ Support
5️⃣ My Profile

💡 *Quick Tips:*
• Send any Uganda number to check subscriber info
• Send 'balance' to check your wallet
• Send 'cancel' anytime to stop current operation

What would you like to do? 🤔"""

UNKNOWN_COMMAND_MESSAGES = (
    "🤔 I didn't understand that. Send *menu* to see what I can do.",
    "😅 Sorry, I didn't catch that. Send *menu* for the list of options.",
    "❓ Hmm, that's not a command I know. Send *help* to see all options.",
)

OPERATION_CANCELLED_MESSAGE = "❌ Operation cancelled. Send 'menu' to start over."
PURCHASE_CANCELLED_MESSAGE = "❌ Purchase cancelled. Send 'menu' to start over."

# ============================================================
# BALANCE, HISTORY, PROFILE, SUPPORT
# ============================================================

BALANCE_MESSAGE = """💳 *Reseller Wallet Balance*

💰 *Balance:* {balance}

Send 'menu' to go back 🔙"""

BALANCE_FAILED_MESSAGE = "❌ Could not fetch the wallet balance right now.\n\n📄 *Reason:* {reason}\n\nPlease try again later."

HISTORY_EMPTY_MESSAGE = "📭 You have no transactions yet.\n\nSend 'menu' to make your first purchase 🚀"

HISTORY_HEADER = "📊 *Your Recent Transactions*\n\n"

HISTORY_FOOTER = "\nSend 'status <transaction id>' to check a transaction.\nSend 'menu' to go back 🔙"

PROFILE_MESSAGE = """👤 *My Profile*

📞 *Number:* {phone}
📅 *Member since:* {member_since}

📊 *Transactions:* {total_transactions}
✅ *Successful:* {successful_transactions}
💰 *Total spent:* {total_spent}
📱 *Saved numbers:* {saved_numbers}

Send 'menu' to go back 🔙"""

SUPPORT_MESSAGE = """📞 *{bot_name} Support*

📧 *Email:* {support_email}
☎️ *Phone:* {support_phone}

When contacting support, please share your *Transaction ID*.

Send 'menu' to go back 🔙"""

# ============================================================
# BUNDLE FLOW
# ============================================================

BUNDLES_HEADER = "📱 *Available Data Bundles*\n\n"

BUNDLES_FOOTER = """📝 *How to Purchase:*
Select bundle number (1-{count})

💡 *Tip:* You can also send a phone number first to pre-select the recipient

Send 'menu' to go back 🔙"""

NO_BUNDLES_MESSAGE = "❌ Sorry, no data bundles are available at the moment. Please try again later."

BUNDLES_FAILED_MESSAGE = "❌ Could not load bundles. Please try again later or contact support."

INVALID_BUNDLE_SELECTION_MESSAGE = "❌ Invalid selection. Please choose a number between 1 and {count}\n\nSend 'menu' to start over."

BUNDLE_SELECTED_MESSAGE = "📱 *Bundle Selected:* {name}\n💰 *Price:* {price}\n\n"

# ============================================================
# AIRTIME FLOW
# ============================================================

AIRTIME_INSTRUCTIONS_MESSAGE = """💰 *Airtime Top-up*

🎯 *How it works:*
1️⃣ Enter the amount (Min: {minimum}, Max: {maximum})
2️⃣ Enter the phone number
3️⃣ Confirm and purchase

💡 *Popular amounts:*
• UGX 1,000
• UGX 2,000
• UGX 5,000
• UGX 10,000

💵 Please enter the amount you want to top up:"""

AMOUNT_BELOW_MINIMUM_MESSAGE = "❌ Minimum airtime amount is {minimum}\n\nPlease enter a valid amount or send 'cancel' to abort."

AMOUNT_ABOVE_MAXIMUM_MESSAGE = "❌ Maximum airtime amount is {maximum} per transaction.\n\nPlease enter a valid amount or send 'cancel' to abort."

AMOUNT_SELECTED_MESSAGE = "💰 *Amount:* {amount}\n\n"

# ============================================================
# RECIPIENT NUMBER
# ============================================================

ENTER_NUMBER_MESSAGE = """📱 Please enter the Uganda mobile number to recharge:

📝 *Format Examples:*
• 0772123456
• 256772123456
• +256772123456

Send 'cancel' to abort 🚫"""

ENTER_NEW_NUMBER_MESSAGE = """📱 Please enter the new Uganda mobile number:

📝 *Format Examples:*
• 0772123456
• 256772123456
• +256772123456"""

INVALID_NUMBER_MESSAGE = """❌ Invalid Uganda mobile number format.

📝 *Please use one of these formats:*
• 0772123456
• 256772123456
• +256772123456

Try again or send 'cancel' to abort."""

SELECT_SAVED_NUMBER_HEADER = "Select recipient number:\n\n"

SELECT_SAVED_NUMBER_FOOTER = "\n🆕 Enter 'new' for different number\nSend 'cancel' to abort 🚫"

INVALID_SAVED_NUMBER_MESSAGE = "❌ Invalid selection. Please choose a number between 1 and {count} or enter 'new' for a different number."

FLOW_LOST_MESSAGE = "❌ Something went wrong. Please start over by sending 'menu'."

# ============================================================
# DIRECT NUMBER LOOKUP
# ============================================================

NUMBER_SELECTED_MESSAGE = """📞 *Number:* {phone}{subscriber_line}

What would you like to do for this number?

1️⃣ Buy Data Bundle
2️⃣ Buy Airtime
3️⃣ Main Menu"""

INVALID_NUMBER_ACTION_MESSAGE = "❓ Please send:\n1️⃣ for a data bundle\n2️⃣ for airtime\n3️⃣ for the main menu"

ENTER_AMOUNT_FOR_NUMBER_MESSAGE = """💰 *Airtime for {phone}*

Enter the amount (Min: {minimum}, Max: {maximum}):"""

# ============================================================
# CONFIRMATION
# ============================================================

BUNDLE_CONFIRMATION_MESSAGE = """🔍 *Purchase Confirmation*

📱 *Bundle:* {name}
💰 *Price:* {price}
📞 *Number:* {phone}{subscriber_line}

📋 *Bundle Details:*
{description}

✅ Confirm purchase?

1️⃣ *YES* - Proceed with purchase
2️⃣ *NO* - Cancel and go back

Send your choice (1 or 2)"""

AIRTIME_CONFIRMATION_MESSAGE = """🔍 *Airtime Purchase Confirmation*

💰 *Amount:* {amount}
📞 *Number:* {phone}{subscriber_line}

✅ Confirm airtime top-up?

1️⃣ *YES* - Proceed with purchase
2️⃣ *NO* - Cancel and go back

Send your choice (1 or 2)"""

CONFIRMATION_REPROMPT_MESSAGE = "❓ Please send:\n1️⃣ *YES* to confirm\n2️⃣ *NO* to cancel\n\nOr send 'cancel' to abort."

SUBSCRIBER_LINE = "\n👤 *Subscriber:* {name}"

# ============================================================
# PURCHASE RESULT
# ============================================================

BUNDLE_SUCCESS_MESSAGE = """✅ *Purchase Successful!* 🎉

📱 *Bundle:* {name}
💰 *Amount:* {amount}
📞 *Number:* {phone}{subscriber_line}
🔢 *Transaction ID:* {transaction_id}
📅 *Date:* {date}

🎯 The bundle has been successfully activated!

Need anything else? Send 'menu' 🏠"""

AIRTIME_SUCCESS_MESSAGE = """✅ *Airtime Top-up Successful!* 🎉

💰 *Amount:* {amount}
📞 *Number:* {phone}{subscriber_line}
🔢 *Transaction ID:* {transaction_id}
📅 *Date:* {date}

🎯 Airtime has been successfully credited!

Need anything else? Send 'menu' 🏠"""

PURCHASE_FAILED_MESSAGE = """❌ *{title} Failed*

🔢 *Transaction ID:* {transaction_id}
📄 *Reason:* {reason}

💡 You can try again or contact support if the issue persists.

Send 'menu' to try again or 'support' for help."""

PURCHASE_TECHNICAL_ERROR_MESSAGE = """❌ *{title} Failed*

🔢 *Transaction ID:* {transaction_id}
📄 *Reason:* We are experiencing technical difficulties reaching the network.

Please try again later or contact support.

Send 'menu' to start over."""

RECHARGE_LIMIT_MESSAGE = """⏸️ *Recharge limit reached*

📞 *Number:* {phone}
📄 *Reason:* {reason}

Please try again later. Send 'menu' to start over."""

# ============================================================
# TRANSACTION STATUS
# ============================================================

TRANSACTION_STATUS_MESSAGE = """🔎 *Transaction Status*

🔢 *Transaction ID:* {transaction_id}
📦 *Type:* {transaction_type}
💰 *Amount:* {amount}
📞 *Number:* {phone}
📌 *Status:* {status}{reason_line}"""

TRANSACTION_NOT_FOUND_MESSAGE = "❌ No transaction found with ID {transaction_id}.\n\nSend 'history' to see your recent transactions."

STATUS_USAGE_MESSAGE = "💡 Send 'status' followed by the transaction ID, for example:\nstatus LYCA_1700000000_ab12cd34"

# ============================================================
# ERRORS
# ============================================================

GENERIC_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again later or contact support."

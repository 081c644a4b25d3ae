"""Reference set of common US first names (lowercase).

Drawn from the most frequent given names in US Social Security card
applications across recent decades. Used to gate the person-name heuristic;
"will" and "may" are left out since they mostly appear as ordinary words.
"""

FIRST_NAMES = frozenset("""
aaron abby abigail adam adrian adriana adrienne aidan aiden aimee alan alana albert alberto alejandra
alejandro alex alexa alexander alexandra alexandria alexis alfred alfredo ali alice alicia alison allan
allen allison alma alvin alyssa amanda amber amelia amir amy ana andre andrea andres andrew andy angel
angela angelica angelina angie anita ann anna annette annie anthony antonio april ariana ariel arlene
armando arnold arthur arturo ashley ashton athena aubrey audrey austin autumn ava avery bailey barbara
barry beatrice becky belinda ben benjamin bernard bernice beth bethany betsy betty beverly bianca bill
billy blake blanca bob bobbie bobby bonnie brad bradley brady brandi brandon brandy brenda brendan brent
brett brian briana brianna bridget brittany brittney brooke bruce bryan bryce caitlin caleb calvin
cameron camila candace carl carla carlos carmen carol carole caroline carolyn carrie carter casey
cassandra catherine cathy cecilia cedric celeste chad charlene charles charlie charlotte chase chelsea
cheryl chester chris christian christina christine christopher christy cindy claire clara clarence
claudia clayton clifford clinton cody colby cole colin colleen connie connor constance corey cory
courtney craig cristina crystal curtis cynthia daisy dakota dale dallas damian damon dan dana daniel
daniela danielle danny darius darla darlene darrell darren darryl daryl dave david dawn dean deanna
debbie deborah debra delia denise dennis derek derrick desiree destiny devin dewayne diana diane dianne
diego dominic dominique don donald donna donovan dora doreen doris dorothy doug douglas drew duane dustin
dwayne dylan earl ed eddie edgar eduardo edward edwin eileen elaine eleanor elena eli elijah elisa
elizabeth ella ellen elliot elliott ellie eloise elsie emily emma emmanuel enrique eric erica erik erika
erin ernest ernesto esther ethan eugene eva evan evelyn everett faye felicia felix fernando florence
frances francesca francis francisco frank franklin fred freddie frederick gabriel gabriela gabriella
gabrielle gail gary gavin gene geneva genevieve geoffrey george georgia gerald geraldine gerardo gilbert
gina gladys glen glenda glenn gloria gordon grace greg gregory greta gretchen guadalupe gwen gwendolyn
hailey haley hannah harold harriet harry harvey hazel heather hector heidi helen henry herbert herman
hilda holly howard hugh hunter ian ida irene iris isaac isabel isabella isaiah ivan jack jackie jackson
jacob jacqueline jade jaime jake james jamie jan jane janelle janet janice jared jasmine jason javier
jay jean jeanette jeanne jeff jeffery jeffrey jenna jennifer jenny jeremiah jeremy jerome jerry jesse
jessica jessie jesus jill jim jimmy jo joan joann joanna joanne jocelyn jodi jody joe joel johanna john
johnathan johnny jon jonathan jordan jorge jose joseph josephine josh joshua joy joyce juan juanita
judith judy julia julian juliana julie julio june justin kaitlyn kara karen kari karl karla kate
katelyn katherine kathleen kathryn kathy katie katrina kay kayla keith kelli kellie kelly kelsey ken
kendra kenneth kenny kent kerry kevin kim kimberly kirk kristen kristi kristin kristina kristy krystal
kurt kyle lacey lana lance larry laura lauren laurie lawrence leah lee leigh lena leon leonard leroy
leslie lester levi lewis liam lila lillian lily linda lindsay lindsey lisa lloyd logan lois lonnie
lora loretta lori lorraine louis louise lucas lucia lucille lucy luis luke lydia lynda lynn mackenzie
madeline madison maggie malcolm mandy manuel marc marcia marco marcus margaret margarita maria mariah
marian marie marilyn mario marion marisa marissa mark marlene marsha marshall martha martin marvin mary
mason matt matthew maureen maurice max maxine maya megan meghan melanie melinda melissa melody melvin
mercedes meredith mia micah michael micheal michele michelle miguel mike mildred miles milton mindy
miranda miriam misty mitchell molly monica monique morgan myra myron nadia nancy naomi natalie natasha
nathan nathaniel neil nelson nicholas nichole nick nicole nikki nina noah noel nora norma norman olga
olivia omar oscar owen paige pam pamela parker pat patricia patrick patsy patti patty paul paula pauline
pedro peggy penny percy perry pete peter phillip phyllis priscilla rachel rafael ralph ramiro ramon
ramona randall randy raquel raul ray raymond rebecca regina reginald renee rhonda ricardo richard rick
ricky riley rita rob robert roberta roberto robin rochelle rodney roger roland ron ronald ronnie rosa
rosalie rose rosemary ross roy ruben ruby russell ruth ryan sabrina sally salvador sam samantha samuel
sandra sandy sara sarah savannah scott sean sebastian selena sergio seth shane shannon shari sharon
shaun shawn shawna sheila shelby shelly sheri sherri sherry shirley sidney sierra simon sofia sonia
sonya sophia spencer stacey stacy stanley stephanie stephen steve steven sue susan suzanne sydney sylvia
tabitha tamara tammy tanya tara taylor ted teresa terrance terrence terri terry thelma theodore theresa
thomas tiffany tim timothy tina toby todd tom tommy toni tony tonya tracey traci tracy travis trent
trevor tricia troy tyler tyrone valerie vanessa vernon veronica vicki vickie victor victoria vincent
viola violet virginia vivian wade wallace walter wanda warren wayne wendy wesley whitney willard
william willie wilma yolanda yvette yvonne zachary zoe
""".split())
